#!/usr/bin/env python3
"""
Diagnostic script for the color hunter.
Runs the classifier on every supported buffer layout, renders an outline and
round-trips a short demo clip through OpenCV's video I/O.
"""

import argparse
import importlib
import os
import sys
import random
import tempfile

REQUIRED_MODULES = [
    ('cv2', 'opencv-python'),
    ('numpy', 'numpy'),
]


def check_dependencies():
    """Import the third-party stack. Returns the (module, package) pairs that failed."""
    print("Checking dependencies...")

    failed = []
    for module_name, package_name in REQUIRED_MODULES:
        try:
            module = importlib.import_module(module_name)
            print(f"  ✓ {module_name} {getattr(module, '__version__', '')}")
        except ImportError as e:
            print(f"  ✗ {module_name} import failed: {e} (pip install {package_name})")
            failed.append((module_name, package_name))
    return failed


def check_buffer_paths():
    """Classify a half-red 4x2 frame in each buffer layout the classifier accepts"""
    print("\nChecking buffer layouts...")

    import numpy as np
    from red_hunter import DetectionLoop, DetectionSettings, FrameClassifier

    red_rgb, blue_rgb = (255, 0, 0), (0, 0, 255)
    rgb = np.array([[red_rgb, red_rgb, blue_rgb, blue_rgb]] * 2, dtype=np.uint8)
    rgba = np.concatenate([rgb, np.full((2, 4, 1), 255, dtype=np.uint8)], axis=2)

    layouts = [
        ("RGB array", 'RGB', rgb.copy()),
        ("BGR array", 'BGR', rgb[..., ::-1].copy()),
        ("RGBA bytearray", 'RGB', bytearray(rgba.tobytes())),
        ("read-only RGB bytes", 'RGB', rgb.tobytes()),
    ]

    all_ok = True
    for label, channel_order, buffer in layouts:
        results = []
        loop = DetectionLoop(FrameClassifier(channel_order=channel_order), DetectionSettings(),
                             on_result=lambda result, loop: results.append(result),
                             width=4, height=2)
        loop.run([buffer])

        ok = len(results) == 1 and results[0].match_ratio == 0.5 and results[0].detected
        if ok and isinstance(buffer, bytes):
            ok = buffer == rgb.tobytes()
        print(f"  {'✓' if ok else '✗'} {label}")
        all_ok = all_ok and ok

    return all_ok


def check_renderer():
    """Draw the outline of a red square and confirm the stroke lands on the frame"""
    print("\nChecking outline renderer...")

    import numpy as np
    from red_hunter import DetectionSettings, FrameClassifier, OutlineRenderer

    frame = np.zeros((40, 40, 3), dtype=np.uint8)
    frame[12:28, 12:28] = (0, 0, 255)  # red in BGR
    result = FrameClassifier(channel_order='BGR').classify(frame, DetectionSettings())
    if not result.outline_rects:
        print("  ✗ No outline produced for a red square")
        return False

    OutlineRenderer(channel_order='BGR').render(result, fps=30)
    x, y, _, _ = result.outline_rects[0]
    ok = tuple(int(c) for c in frame[y, x]) == (0, 0, 255)
    print(f"  {'✓' if ok else '✗'} {len(result.outline_rects)} outline boxes drawn")
    return ok


def check_video_io(frames=12):
    """Write a short demo clip and hunt through it. A missing codec is only a warning."""
    print("\nChecking video I/O...")

    import cv2
    from create_demo_video import draw_frame
    from red_hunter import DetectionLoop, DetectionSettings, FrameClassifier

    width, height, fps = 160, 120, 30
    with tempfile.TemporaryDirectory() as tmp_dir:
        path = os.path.join(tmp_dir, "check.avi")
        writer = cv2.VideoWriter(path, cv2.VideoWriter_fourcc(*'MJPG'), fps, (width, height))
        if not writer.isOpened():
            print("  ⚠ No MJPG encoder available, skipping")
            return True

        rng = random.Random(0)
        for frame_num in range(frames):
            writer.write(draw_frame(frame_num, fps, width, height, rng))
        writer.release()

        cap = cv2.VideoCapture(path)
        loop = DetectionLoop(FrameClassifier(channel_order='BGR'), DetectionSettings())
        detected = []
        loop.on_result = lambda result, loop: detected.append(result.detected)
        processed = loop.run(cap)
        cap.release()

    ok = processed == frames and any(detected)
    print(f"  {'✓' if ok else '✗'} {processed}/{frames} frames decoded, "
          f"{sum(detected)} with detection")
    return ok


def check_camera():
    """Grab and classify one webcam frame"""
    print("\nChecking webcam...")

    from main_webcam import initialize_webcam
    from red_hunter import DetectionSettings, FrameClassifier

    try:
        cap = initialize_webcam()
    except RuntimeError as e:
        print(f"  ✗ {e}")
        return False

    try:
        ret, frame = cap.read()
        if not ret:
            print("  ✗ Camera opened but frame capture failed")
            return False
        result = FrameClassifier(channel_order='BGR').classify(frame, DetectionSettings())
        print(f"  ✓ {frame.shape[1]}x{frame.shape[0]} frame, {result.match_ratio * 100:.2f}% target color")
        return True
    finally:
        cap.release()


def main(argv=None):
    parser = argparse.ArgumentParser(description='Color hunter diagnostics')
    parser.add_argument('--camera', action='store_true', help='Also grab a frame from the webcam')
    args = parser.parse_args(argv)

    print("Color Hunter Diagnostics")
    print("=" * 40)

    missing = check_dependencies()
    if missing:
        print("\nInstall the missing packages: pip install " + " ".join(pkg for _, pkg in missing))
        return 1

    checks = [check_buffer_paths, check_renderer, check_video_io]
    if args.camera:
        checks.append(check_camera)
    failed = [check.__name__ for check in checks if not check()]

    print("\n" + "=" * 40)
    if failed:
        print(f"✗ Failed: {', '.join(failed)}")
        return 1

    print(f"✓ {len(checks)} checks passed")
    print("Next: python create_demo_video.py && python red_hunter.py --source demo.mp4")
    return 0


if __name__ == "__main__":
    sys.exit(main())
