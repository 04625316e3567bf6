"""
Save a sample frame with the color hunting visualization
"""

import cv2
from red_hunter import DetectionSettings, FrameClassifier, OutlineRenderer


def save_sample_frame(source='demo.mp4', frame_index=30, output='hunting_sample.jpg'):
    cap = cv2.VideoCapture(source)
    classifier = FrameClassifier(channel_order='BGR')
    renderer = OutlineRenderer(channel_order='BGR')
    settings = DetectionSettings()

    # Skip ahead to the requested frame
    frame = None
    for _ in range(frame_index + 1):
        ret, next_frame = cap.read()
        if not ret:
            break
        frame = next_frame
    cap.release()

    if frame is None:
        print(f'Could not read a frame from {source}')
        return None

    result = classifier.classify(frame, settings)
    cv2.imwrite(output, renderer.render(result))
    cv2.imwrite(output.replace('.jpg', '_mask.png'), result.mask * 255)

    print(f'Saved hunting visualization to {output}')
    print(f'Matching pixels: {result.matching_pixels}/{result.total_pixels} ({result.match_ratio * 100:.2f}%)')
    print(f'Detected: {result.detected}, outline boxes: {len(result.outline_rects)}')
    return result

if __name__ == "__main__":
    save_sample_frame()
