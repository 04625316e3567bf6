#!/usr/bin/env python3
"""
Webcam Color Hunter
Desktop webcam front end for the FrameClassifier pipeline with live trackbar controls
"""

import time

import cv2
from red_hunter import (
    Config, DetectionLoop, DetectionSettings, FrameClassifier, InvalidSettings,
    OutlineRenderer, ResultLogger, iter_capture,
)

MAIN_WINDOW = "Red Hunter Webcam"
MASK_WINDOW = "Red Hunter Webcam - Mask"
CONTROLS_WINDOW = "Red Hunter Controls"

# Keys 1-4 switch the target color
COLOR_PRESETS = {
    ord('1'): ("red", "#ff0000"),
    ord('2'): ("green", "#00ff00"),
    ord('3'): ("blue", "#0000ff"),
    ord('4'): ("yellow", "#ffff00"),
}

# Trackbar name -> (setting, maximum, scale applied before DetectionSettings.update)
TRACKBARS = {
    "Hue tolerance": ('hue_tolerance', 360, 1),
    "Saturation min %": ('saturation_min', 100, 100),
    "Brightness min %": ('brightness_min', 100, 100),
    "Threshold %": ('match_threshold', 100, 100),
}


def initialize_webcam() -> cv2.VideoCapture:
    """
    Find and configure the first working webcam
    Returns configured VideoCapture instance ready for capture
    """
    print("Initializing webcam...")

    for camera_index in [0, 1, 2]:
        cap = cv2.VideoCapture(camera_index)
        if cap.isOpened():
            print(f"Camera found at index {camera_index}")

            cap.set(cv2.CAP_PROP_FRAME_WIDTH, Config.FRAME_WIDTH)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, Config.FRAME_HEIGHT)
            cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)       # Minimal buffer for low latency

            actual_width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
            actual_height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
            print(f"Camera initialized successfully:")
            print(f"  Resolution: {actual_width}x{actual_height}")

            return cap
        cap.release()

    raise RuntimeError("No webcam found. Please check that your camera is connected and not in use by another application.")


def trackbar_position(settings: DetectionSettings, setting: str, scale: int) -> int:
    return int(round(getattr(settings, setting) * scale))


def create_controls(settings: DetectionSettings):
    """Create one trackbar per tunable setting, each writing through DetectionSettings.update"""
    cv2.namedWindow(CONTROLS_WINDOW, cv2.WINDOW_NORMAL)

    for name, (setting, maximum, scale) in TRACKBARS.items():
        def on_change(position, setting=setting, scale=scale):
            try:
                settings.update(**{setting: position / scale})
            except InvalidSettings as e:
                print(f"Ignoring control change: {e}")

        cv2.createTrackbar(name, CONTROLS_WINDOW, trackbar_position(settings, setting, scale), maximum, on_change)


def main():
    """
    Main application loop for webcam color hunting
    """
    print("=" * 60)
    print("WEBCAM COLOR HUNTER")
    print("=" * 60)

    # Step 1: Initialize webcam
    try:
        cap = initialize_webcam()
    except RuntimeError as e:
        print(f"Failed to initialize webcam: {e}")
        print("Troubleshooting:")
        print("  - Make sure no other apps are using the camera")
        print("  - Check the operating system camera permissions")
        return 1

    # Step 2: Initialize detection components
    settings = DetectionSettings()
    classifier = FrameClassifier(channel_order='BGR')
    renderer = OutlineRenderer(channel_order='BGR')
    result_logger = ResultLogger("Webcam") if Config.ENABLE_RESULT_LOGGING else None

    # Step 3: Create display windows
    cv2.namedWindow(MAIN_WINDOW, cv2.WINDOW_NORMAL)
    cv2.resizeWindow(MAIN_WINDOW, 960, 540)
    create_controls(settings)

    print("\nWebcam feed started successfully!")
    print(f"Target: {settings.as_dict()['target_color']} (hue {settings.target_hue:.1f})")
    print(f"Result logging: {'ON' if Config.ENABLE_RESULT_LOGGING else 'OFF'}")
    print("\nControls:")
    print("  'q'     - Quit application")
    print("  's'     - Save current frame snapshot")
    print("  'm'     - Toggle mask view")
    print("  'f'     - Toggle FPS display")
    print("  '1'-'4' - Target red / green / blue / yellow")
    print("  space   - Pause / resume detection")

    def handle_key(key: int, loop: DetectionLoop, frame=None):
        if key == ord('q'):
            print("Quit requested by user")
            return False
        if key == ord('s') and frame is not None:
            filename = f"webcam_snapshot_{loop.frame_count:06d}.jpg"
            cv2.imwrite(filename, frame)
            print(f"Saved snapshot: {filename}")
        elif key == ord('m'):
            Config.SHOW_MASK = not Config.SHOW_MASK
            if not Config.SHOW_MASK:
                cv2.destroyWindow(MASK_WINDOW)
            print(f"Mask view: {'ON' if Config.SHOW_MASK else 'OFF'}")
        elif key == ord('f'):
            Config.SHOW_FPS = not Config.SHOW_FPS
            print(f"FPS display: {'ON' if Config.SHOW_FPS else 'OFF'}")
        elif key in COLOR_PRESETS:
            name, hex_color = COLOR_PRESETS[key]
            settings.update(target_color=hex_color)
            print(f"Target color: {name} (hue {settings.target_hue:.1f})")
        elif key == ord(' '):
            if loop.running:
                loop.stop()
                print("Detection paused")
            else:
                loop.start()
                print("Detection resumed")
        return True

    quit_requested = False

    def on_result(result, loop: DetectionLoop):
        nonlocal quit_requested
        frame = renderer.render(result, loop.fps_counter.fps if Config.SHOW_FPS else None)
        cv2.imshow(MAIN_WINDOW, frame)
        if Config.SHOW_MASK:
            cv2.imshow(MASK_WINDOW, result.mask * 255)

        key = cv2.waitKey(1) & 0xFF
        if not handle_key(key, loop, frame):
            quit_requested = True
            loop.stop()

    loop = DetectionLoop(classifier, settings, on_result, result_logger)

    start_time = time.time()
    try:
        # Step 4: Main processing loop, paused frames are shown raw
        loop.start()
        for frame in iter_capture(cap):
            if loop.running:
                loop.step(frame)
            else:
                cv2.imshow(MAIN_WINDOW, frame)
                if not handle_key(cv2.waitKey(1) & 0xFF, loop, frame):
                    quit_requested = True
            if quit_requested:
                break

    except KeyboardInterrupt:
        print("\nInterrupted by user (Ctrl+C)")

    finally:
        # Step 5: Cleanup
        print("Shutting down webcam color hunter...")
        loop.stop()

        total_time = time.time() - start_time
        final_fps = loop.frame_count / total_time if total_time > 0 else 0
        print(f"Session Statistics:")
        print(f"  Total frames processed: {loop.frame_count}")
        print(f"  Session duration: {total_time:.1f} seconds")
        print(f"  Average FPS: {final_fps:.1f}")

        if result_logger:
            result_logger.finalize_session(final_fps, settings)

        cap.release()
        print("Webcam released")
        cv2.destroyAllWindows()
        print("Webcam color hunter stopped. Goodbye!")

    return 0

if __name__ == "__main__":
    raise SystemExit(main())
