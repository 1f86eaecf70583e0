from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase
from django.utils import timezone

from core.exceptions import ValidationError
from apps.simulations.validators import (
    ensure_future,
    parse_start_time,
    validate_data_source,
    validate_name,
)


class NameValidationTests(SimpleTestCase):
    def test_accepts_up_to_seventy_characters(self):
        self.assertEqual(validate_name("a" * 70), "a" * 70)

    def test_rejects_blank_and_too_long(self):
        for value in ("", "   ", None, "a" * 71):
            with self.subTest(value=value):
                with self.assertRaises(ValidationError):
                    validate_name(value)


class DataSourceValidationTests(SimpleTestCase):
    def test_accepts_windows_and_posix_paths(self):
        for path in (
            "C:\\Data\\weather_2025.csv",
            "/srv/data/weather-feed.csv",
            "relative dir/file.csv",
        ):
            with self.subTest(path=path):
                self.assertEqual(validate_data_source(path), path)

    def test_rejects_file_name_starting_with_digit(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_data_source("C:\\Data\\2025weather.csv")
        self.assertIn("numeric digit", ctx.exception.message)

    def test_rejects_disallowed_characters(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_data_source("/srv/data/weather*.csv")
        self.assertEqual(list(ctx.exception.details), ["dataSource"])

    def test_rejects_paths_over_limit(self):
        with self.assertRaises(ValidationError):
            validate_data_source("/" + "a" * 260)


class StartTimeTests(SimpleTestCase):
    def test_naive_values_are_utc(self):
        parsed = parse_start_time("2030-01-02T03:04:05")
        self.assertEqual(parsed, datetime(2030, 1, 2, 3, 4, 5, tzinfo=dt_timezone.utc))

    def test_offsets_are_normalized_to_utc(self):
        parsed = parse_start_time("2030-01-02T05:04:05+02:00")
        self.assertEqual(parsed, datetime(2030, 1, 2, 3, 4, 5, tzinfo=dt_timezone.utc))

    def test_rejects_garbage(self):
        with self.assertRaises(ValidationError):
            parse_start_time("tomorrow")

    def test_fractional_seconds_are_dropped(self):
        parsed = parse_start_time("2030-01-02T03:04:05.750000Z")
        self.assertEqual(parsed, datetime(2030, 1, 2, 3, 4, 5, tzinfo=dt_timezone.utc))

    def test_ensure_future_uses_second_precision(self):
        now = timezone.now().replace(microsecond=500000)
        with self.assertRaises(ValidationError):
            ensure_future(now.replace(microsecond=900000), now=now)
        later = now + timedelta(seconds=1)
        self.assertEqual(ensure_future(later, now=now), later)
