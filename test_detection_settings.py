import unittest

from red_hunter import Color, DetectionSettings, InvalidSettings, main


class TestDetectionSettings(unittest.TestCase):

    def test_defaults(self):
        settings = DetectionSettings()
        self.assertEqual(settings.target_color, Color(255, 0, 0))
        self.assertEqual(settings.target_hue, 0)
        self.assertEqual(settings.hue_tolerance, 20)
        self.assertEqual(settings.saturation_min, 0.4)
        self.assertEqual(settings.brightness_min, 0.3)
        self.assertEqual(settings.match_threshold, 0.01)

    def test_target_hue_follows_target_color(self):
        settings = DetectionSettings(target_color="#00ff00")
        self.assertAlmostEqual(settings.target_hue, 120)

        settings.update(target_color=(0, 0, 255))
        self.assertAlmostEqual(settings.target_hue, 240)
        self.assertEqual(settings.target_color, Color(0, 0, 255))

    def test_target_hue_untouched_by_other_updates(self):
        settings = DetectionSettings(target_color="#ffff00")
        settings.update(hue_tolerance=5, saturation_min=0.1)
        self.assertAlmostEqual(settings.target_hue, 60)

    def test_out_of_range_values_rejected(self):
        settings = DetectionSettings()
        for field, value in (('hue_tolerance', -1), ('hue_tolerance', 361),
                             ('saturation_min', 1.5), ('brightness_min', -0.1),
                             ('match_threshold', 2), ('match_threshold', float('nan')),
                             ('hue_tolerance', float('inf')), ('saturation_min', 'lots')):
            with self.assertRaises(InvalidSettings, msg=f"{field}={value!r}"):
                settings.update(**{field: value})

    def test_bad_target_colors_rejected(self):
        settings = DetectionSettings()
        for value in ((256, 0, 0), (0, -1, 0), (1, 2), (1.5, 0, 0), ("a", 0, 0), 7):
            with self.assertRaises(InvalidSettings, msg=repr(value)):
                settings.update(target_color=value)

    def test_malformed_hex_falls_back_to_red(self):
        settings = DetectionSettings(target_color="#00ff00")
        settings.update(target_color="not a color")
        self.assertEqual(settings.target_color, Color(255, 0, 0))
        self.assertEqual(settings.target_hue, 0)

    def test_failed_update_applies_nothing(self):
        settings = DetectionSettings()
        with self.assertRaises(InvalidSettings):
            settings.update(target_color="#0000ff", hue_tolerance=10, saturation_min=3)
        self.assertEqual(settings.target_color, Color(255, 0, 0))
        self.assertEqual(settings.hue_tolerance, 20)
        self.assertEqual(settings.saturation_min, 0.4)

    def test_unknown_setting(self):
        with self.assertRaises(InvalidSettings):
            DetectionSettings().update(contrast=0.5)

    def test_invalid_settings_is_value_error(self):
        with self.assertRaises(ValueError):
            DetectionSettings(match_threshold=-1)

    def test_boundaries_accepted(self):
        settings = DetectionSettings(hue_tolerance=360, saturation_min=0, brightness_min=1, match_threshold=1)
        self.assertEqual(settings.hue_tolerance, 360)
        settings.update(hue_tolerance=0, match_threshold=0)
        self.assertEqual(settings.match_threshold, 0)

    def test_as_dict(self):
        settings = DetectionSettings(target_color=(18, 52, 86))
        self.assertEqual(settings.as_dict()['target_color'], "#123456")
        self.assertIn('target_hue', settings.as_dict())

    def test_cli_rejects_invalid_settings(self):
        with self.assertRaises(SystemExit) as ctx:
            main(['--threshold', '1.5', '--no-display', '--no-logging'])
        self.assertEqual(ctx.exception.code, 2)


if __name__ == '__main__':
    unittest.main()
