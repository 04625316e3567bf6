import unittest
import numpy as np

from red_hunter import DetectionSettings, FrameClassifier, ShapeMismatch


def solid_frame(width, height, color, channels=3):
    frame = np.zeros((height, width, channels), dtype=np.uint8)
    frame[..., :3] = color
    if channels == 4:
        frame[..., 3] = 255
    return frame


class TestFrameClassifier(unittest.TestCase):

    def setUp(self):
        self.classifier = FrameClassifier()
        self.settings = DetectionSettings()

    def test_black_frame_never_detects(self):
        for color in ("#ff0000", "#00ff00", "#808080"):
            self.settings.update(target_color=color)
            result = self.classifier.classify(solid_frame(16, 12, (0, 0, 0)), self.settings)
            self.assertEqual(result.match_ratio, 0)
            self.assertFalse(result.detected)
            self.assertEqual(result.matching_pixels, 0)
            self.assertEqual(result.outline_rects, [])

    def test_frame_of_target_color_fully_matches(self):
        for hex_color, rgb in (("#ff0000", (255, 0, 0)), ("#00ff00", (0, 255, 0)), ("#3366cc", (51, 102, 204))):
            self.settings.update(target_color=hex_color)
            frame = solid_frame(10, 8, rgb)
            result = self.classifier.classify(frame, self.settings)
            self.assertEqual(result.match_ratio, 1)
            self.assertTrue(result.detected)
            # Matched pixels keep their color
            self.assertTrue(np.all(result.buffer == rgb))

    def test_ratio_agrees_with_mask(self):
        rng = np.random.default_rng(11)
        frame = rng.integers(0, 256, size=(37, 53, 3), dtype=np.uint8)
        result = self.classifier.classify(frame, self.settings)

        self.assertEqual(result.mask.shape, (37, 53))
        self.assertEqual(result.total_pixels, 37 * 53)
        self.assertEqual(int(result.mask.sum()), result.matching_pixels)
        self.assertEqual(result.match_ratio, result.mask.sum() / (37 * 53))
        self.assertGreater(result.matching_pixels, 0)
        self.assertLess(result.matching_pixels, 37 * 53)

    def test_non_matching_pixels_turn_gray_in_place(self):
        frame = np.array([[(255, 0, 0), (0, 0, 255), (200, 40, 40)]], dtype=np.uint8)
        result = self.classifier.classify(frame, self.settings)

        self.assertIs(result.buffer, frame)
        np.testing.assert_array_equal(result.mask, [[1, 0, 1]])
        np.testing.assert_array_equal(frame[0, 0], (255, 0, 0))
        np.testing.assert_array_equal(frame[0, 1], (29, 29, 29))
        np.testing.assert_array_equal(frame[0, 2], (200, 40, 40))

    def test_saturation_and_brightness_floors(self):
        frame = np.array([[(255, 0, 0), (255, 180, 180), (60, 0, 0)]], dtype=np.uint8)
        result = self.classifier.classify(frame, self.settings)
        # Pale red fails saturation, dark red fails brightness
        np.testing.assert_array_equal(result.mask, [[1, 0, 0]])

        self.settings.update(saturation_min=0, brightness_min=0)
        frame = np.array([[(255, 0, 0), (255, 180, 180), (60, 0, 0)]], dtype=np.uint8)
        result = self.classifier.classify(frame, self.settings)
        np.testing.assert_array_equal(result.mask, [[1, 1, 1]])

    def test_hue_wrap_in_frame(self):
        self.settings.update(target_color=(255, 4, 0), hue_tolerance=5)
        frame = solid_frame(4, 4, (255, 0, 4))
        result = self.classifier.classify(frame, self.settings)
        self.assertEqual(result.match_ratio, 1)

    def test_detection_threshold(self):
        frame = solid_frame(10, 10, (0, 0, 255))
        frame[0, :5] = (255, 0, 0)  # 5% red

        self.settings.update(match_threshold=0.05)
        self.assertTrue(self.classifier.classify(frame.copy(), self.settings).detected)

        self.settings.update(match_threshold=0.06)
        result = self.classifier.classify(frame.copy(), self.settings)
        self.assertAlmostEqual(result.match_ratio, 0.05)
        self.assertFalse(result.detected)

    def test_alpha_channel_untouched(self):
        frame = solid_frame(3, 2, (0, 0, 255), channels=4)
        frame[..., 3] = 77
        frame[0, 0, :3] = (255, 0, 0)
        result = self.classifier.classify(frame, self.settings)

        np.testing.assert_array_equal(frame[..., 3], 77)
        np.testing.assert_array_equal(frame[1, 1], (29, 29, 29, 77))
        np.testing.assert_array_equal(frame[0, 0], (255, 0, 0, 77))
        self.assertEqual(result.matching_pixels, 1)

    def test_bgr_channel_order(self):
        classifier = FrameClassifier(channel_order='bgr')
        frame = np.array([[(0, 0, 255), (255, 0, 0)]], dtype=np.uint8)  # red, blue in BGR
        result = classifier.classify(frame, self.settings)
        np.testing.assert_array_equal(result.mask, [[1, 0]])
        np.testing.assert_array_equal(frame[0, 1], (29, 29, 29))

    def test_flat_bytearray_is_mutated_in_place(self):
        pixels = bytearray([255, 0, 0, 255,   0, 0, 255, 128,
                            0, 255, 0, 255,   255, 0, 0, 10])
        result = self.classifier.classify(pixels, self.settings, width=2, height=2)

        self.assertEqual(result.buffer.shape, (2, 2, 4))
        self.assertEqual(result.match_ratio, 0.5)
        self.assertEqual(list(pixels[4:8]), [29, 29, 29, 128])
        self.assertEqual(list(pixels[8:12]), [150, 150, 150, 255])
        self.assertEqual(list(pixels[0:4]), [255, 0, 0, 255])

    def test_read_only_buffer_is_copied(self):
        pixels = bytes([0, 0, 255] * 4)
        result = self.classifier.classify(pixels, self.settings, width=4, height=1)
        self.assertEqual(pixels, bytes([0, 0, 255] * 4))
        np.testing.assert_array_equal(result.buffer, np.full((1, 4, 3), 29, dtype=np.uint8))

    def test_shape_mismatch(self):
        with self.assertRaises(ShapeMismatch):
            self.classifier.classify(bytearray(10), self.settings, width=2, height=2)
        with self.assertRaises(ShapeMismatch):
            self.classifier.classify(bytearray(8), self.settings, width=2, height=2)  # 2 channels
        with self.assertRaises(ShapeMismatch):
            self.classifier.classify(bytearray(12), self.settings)
        with self.assertRaises(ShapeMismatch):
            self.classifier.classify(bytearray(12), self.settings, width=0, height=4)
        with self.assertRaises(ShapeMismatch):
            self.classifier.classify(np.zeros((4, 4), dtype=np.uint8), self.settings)
        with self.assertRaises(ShapeMismatch):
            self.classifier.classify(np.zeros((4, 4, 3), dtype=np.float32), self.settings)
        with self.assertRaises(ShapeMismatch):
            self.classifier.classify(np.zeros((0, 4, 3), dtype=np.uint8), self.settings)

    def test_shape_mismatch_leaves_buffer_alone(self):
        frame = solid_frame(4, 4, (0, 0, 255))
        with self.assertRaises(ShapeMismatch):
            self.classifier.classify(frame, self.settings, width=5, height=4)
        self.assertTrue(np.all(frame == (0, 0, 255)))

    def test_shape_mismatch_is_value_error(self):
        with self.assertRaises(ValueError):
            self.classifier.classify(bytearray(7), self.settings, width=1, height=2)

    def test_unknown_channel_order(self):
        with self.assertRaises(ValueError):
            FrameClassifier(channel_order='HSV')


class TestEdgeDetection(unittest.TestCase):

    def setUp(self):
        self.classifier = FrameClassifier()

    def test_filled_rectangle_reports_only_perimeter(self):
        mask = np.zeros((20, 20), dtype=np.uint8)
        mask[4:15, 4:15] = 1

        rects = self.classifier.find_edges(mask)
        centres = {(x + 1, y + 1) for x, y, w, h in rects}

        expected = {(x, y) for x in range(4, 15, 2) for y in range(4, 15, 2)
                    if x in (4, 14) or y in (4, 14)}
        self.assertEqual(centres, expected)
        self.assertEqual(len(rects), 20)
        self.assertNotIn((8, 8), centres)
        self.assertTrue(all((w, h) == (3, 3) for _, _, w, h in rects))

    def test_frame_border_counts_as_edge(self):
        mask = np.ones((6, 6), dtype=np.uint8)
        centres = {(x + 1, y + 1) for x, y, _, _ in self.classifier.find_edges(mask)}
        self.assertEqual(centres, {(0, 0), (2, 0), (4, 0), (0, 2), (0, 4)})

    def test_only_sampling_grid_is_scanned(self):
        mask = np.zeros((5, 5), dtype=np.uint8)
        mask[1, 1] = 1  # isolated cell off the grid
        self.assertEqual(self.classifier.find_edges(mask), [])

        mask[2, 2] = 1
        self.assertEqual(self.classifier.find_edges(mask), [(1, 1, 3, 3)])

    def test_rects_in_row_major_order(self):
        mask = np.zeros((8, 8), dtype=np.uint8)
        mask[6, 2] = 1
        mask[2, 6] = 1
        mask[2, 4] = 1
        self.assertEqual(self.classifier.find_edges(mask), [(3, 1, 3, 3), (5, 1, 3, 3), (1, 5, 3, 3)])

    def test_classify_outlines_matched_blob(self):
        frame = solid_frame(12, 12, (0, 0, 255))
        frame[2:9, 2:9] = (255, 0, 0)
        result = FrameClassifier().classify(frame, DetectionSettings())

        centres = {(x + 1, y + 1) for x, y, _, _ in result.outline_rects}
        expected = {(x, y) for x in (2, 4, 6, 8) for y in (2, 4, 6, 8) if x in (2, 8) or y in (2, 8)}
        self.assertEqual(centres, expected)


if __name__ == '__main__':
    unittest.main()
