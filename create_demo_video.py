"""
Create demo videos for testing the color hunter.
Mixes red targets with colored distractors, grey clutter and stretches without any target.
"""

import cv2
import numpy as np
import math
import random

# Distractor colors (BGR), deliberately away from red
DISTRACTOR_COLORS = [(255, 0, 0), (0, 255, 0), (255, 255, 0), (0, 255, 255), (200, 200, 200)]


def draw_frame(frame_num: int, fps: int, width: int, height: int, rng: random.Random) -> np.ndarray:
    """
    Render one demo frame.

    Scenarios (8-second cycle):
    - 0-2s: single red disc orbiting the centre
    - 2-4s: red disc shrinking until it drops below a 1% match ratio
    - 4-6s: no red at all, only distractors
    - 6-8s: several red blobs plus a dark red one that fails the brightness test

    Returns:
        BGR frame
    """
    t = frame_num / fps
    scenario_time = t % 8

    # Mid-grey textured background
    frame = np.full((height, width, 3), 90, dtype=np.uint8)
    for y in range(0, height, 40):
        cv2.line(frame, (0, y), (width, y), (110, 110, 110), 1)

    for _ in range(6):
        center = (rng.randint(20, width - 20), rng.randint(20, height - 20))
        cv2.circle(frame, center, rng.randint(8, 25), rng.choice(DISTRACTOR_COLORS), -1)

    red = (0, 0, 255)
    if scenario_time < 2:
        angle = 2 * math.pi * scenario_time / 2
        center = (int(width / 2 + width / 4 * math.cos(angle)), int(height / 2 + height / 4 * math.sin(angle)))
        cv2.circle(frame, center, 60, red, -1)
    elif scenario_time < 4:
        radius = int(60 * (1 - (scenario_time - 2) / 2)) + 2
        cv2.circle(frame, (width // 2, height // 2), radius, red, -1)
    elif scenario_time < 6:
        pass
    else:
        cv2.circle(frame, (width // 4, height // 3), 40, red, -1)
        cv2.rectangle(frame, (width // 2, height // 2), (width // 2 + 90, height // 2 + 60), (30, 30, 220), -1)
        cv2.circle(frame, (3 * width // 4, 2 * height // 3), 35, (0, 0, 50), -1)  # Too dark to match

    cv2.putText(frame, f"Time: {t:.1f}s", (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2)
    return frame


def create_demo_video(filename="demo.mp4", duration=16, fps=30, width=640, height=480, seed=7):
    """
    Write the demo video.

    Args:
        filename: Output video filename
        duration: Video duration in seconds
        fps: Frames per second
        width, height: Frame size
        seed: Seed for distractor placement
    """
    total_frames = duration * fps

    fourcc = cv2.VideoWriter_fourcc(*'mp4v')
    out = cv2.VideoWriter(filename, fourcc, fps, (width, height))

    if not out.isOpened():
        print("Warning: Could not open video writer with mp4v, trying XVID...")
        fourcc = cv2.VideoWriter_fourcc(*'XVID')
        out = cv2.VideoWriter(filename, fourcc, fps, (width, height))

    if not out.isOpened():
        print("Error: Could not initialize video writer")
        return False

    print(f"Creating demo video: {filename}")
    print(f"Duration: {duration}s, FPS: {fps}, Total frames: {total_frames}")
    print(f"Resolution: {width}x{height}")

    rng = random.Random(seed)
    for frame_num in range(total_frames):
        out.write(draw_frame(frame_num, fps, width, height, rng))

        if frame_num % (fps * 4) == 0:
            print(f"  {frame_num}/{total_frames} frames written")

    out.release()
    print(f"Demo video saved: {filename}")
    return True


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description='Create a demo video for the color hunter')
    parser.add_argument('--output', type=str, default='demo.mp4', help='Output filename')
    parser.add_argument('--duration', type=int, default=16, help='Duration in seconds')
    parser.add_argument('--fps', type=int, default=30, help='Frames per second')
    args = parser.parse_args()

    create_demo_video(args.output, args.duration, args.fps)
