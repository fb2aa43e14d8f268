"""End-to-end analysis payloads, file output and the CLI"""

import json

import pytest

from saju.cache import TTLCache
from saju.create_chart import analyze, compute_and_save_chart
from saju.errors import InvalidLeapMonthError, UnknownAlgorithmError
from saju.run import main

PAYLOAD_KEYS = {
    "input", "normalized", "chart", "day_master_strength",
    "yongsin", "yongsin_all", "applicability", "decade_luck",
}


class TestAnalyze:
    def test_payload_shape(self):
        payload = analyze("1990-06-15", "10:30", "male")
        assert set(payload) == PAYLOAD_KEYS
        assert payload["input"]["method"] == "strength"
        assert payload["chart"]["pillars"]["year"]["combined"] == "庚午"
        assert payload["yongsin"]["method"] == "strength"
        assert set(payload["yongsin_all"]) == {"strength", "seasonal", "mediation", "disease"}
        assert set(payload["applicability"]) == set(payload["yongsin_all"])
        assert payload["decade_luck"]["direction"] == "forward"
        assert payload["decade_luck"]["periods"][0]["combined"] == "癸未"
        json.dumps(payload, ensure_ascii=False)

    def test_auto_method(self):
        payload = analyze("1990-06-15", "10:30", "male", method="auto")
        assert payload["yongsin"]["recommended_method"] == "strength"

    def test_settings_default_method(self, settings):
        payload = analyze("1990-06-15", "10:30", "male",
                          settings=settings.with_overrides(yongsin_method="disease"))
        assert payload["yongsin"]["method"] == "disease"

    def test_unknown_method_fails_fast(self):
        with pytest.raises(UnknownAlgorithmError):
            analyze("1990-06-15", "10:30", "male", method="astrology")

    def test_lunar_leap_input(self):
        payload = analyze("1990-05-01", "12:00", "female", "lunar", True)
        assert payload["normalized"]["solar_date"] == "1990-06-23"
        assert payload["normalized"]["is_leap_month"] is True

    def test_invalid_leap_month(self):
        with pytest.raises(InvalidLeapMonthError):
            analyze("2024-03-01", "12:00", "female", "lunar", True)

    def test_cache_reuses_payload(self):
        cache = TTLCache(capacity=4, ttl_seconds=60)
        first = analyze("1990-06-15", "10:30", "male", cache=cache)
        second = analyze("1990-06-15", "10:30", "male", cache=cache)
        assert second == first
        assert second is not first
        assert cache.stats()["hits"] == 1
        other = analyze("1990-06-15", "10:30", "female", cache=cache)
        assert other is not first
        assert len(cache) == 2

    def test_cached_payload_cannot_be_edited_through_a_result(self):
        cache = TTLCache(capacity=4, ttl_seconds=60)
        first = analyze("1990-06-15", "10:30", "male", cache=cache)
        first["chart"]["pillars"]["year"]["combined"] = "XX"
        first["decade_luck"]["periods"].clear()
        second = analyze("1990-06-15", "10:30", "male", cache=cache)
        assert second["chart"]["pillars"]["year"]["combined"] == "庚午"
        assert second["decade_luck"]["periods"]
        assert cache.stats()["hits"] == 1


class TestComputeAndSaveChart:
    def test_without_output_dir(self):
        result = compute_and_save_chart("Minji", "1990-06-15", "10:30", "female")
        assert result["name"] == "Minji"
        assert result["path"] is None

    def test_writes_json(self, tmp_path):
        result = compute_and_save_chart("Kim Minji", "1990-06-15", "10:30", "female",
                                        city="Busan", output_dir=tmp_path / "charts")
        path = tmp_path / "charts" / "kim_minji.json"
        assert result["path"] == str(path)
        saved = json.loads(path.read_text(encoding="utf-8"))
        assert saved["name"] == "Kim Minji"
        assert saved["normalized"]["city"] == "Busan"
        assert saved["chart"]["day_master"]["chinese"] == "癸"

    def test_longitude_wins_over_city(self):
        result = compute_and_save_chart("x", "1990-06-15", "10:30", "male",
                                        city="Busan", longitude=135.0)
        assert result["normalized"]["longitude"] == 135.0
        assert result["normalized"]["city"] is None


class TestCli:
    def test_success(self, tmp_path, capsys):
        code = main([
            "--birth-date", "1990-06-15", "--birth-time", "10:30", "--gender", "male",
            "--city", "Seoul", "--method", "seasonal", "--name", "Test",
            "--output-dir", str(tmp_path),
        ])
        assert code == 0
        out = json.loads(capsys.readouterr().out)
        assert out["yongsin"]["method"] == "seasonal"
        assert (tmp_path / "test.json").exists()

    def test_error_exit_code(self, capsys):
        code = main([
            "--birth-date", "2024-03-01", "--birth-time", "12:00", "--gender", "female",
            "--calendar", "lunar", "--leap-month",
        ])
        assert code == 2
        err = json.loads(capsys.readouterr().err)
        assert err["error"] == "INVALID_LEAP_MONTH"
        assert err["details"]["year"] == 2024

    def test_unsupported_year(self, capsys):
        code = main(["--birth-date", "1850-01-01", "--birth-time", "12:00", "--gender", "male"])
        assert code == 2
        assert json.loads(capsys.readouterr().err)["error"] == "UNSUPPORTED_YEAR"

    def test_bad_method_rejected_by_parser(self):
        with pytest.raises(SystemExit):
            main(["--birth-date", "1990-06-15", "--birth-time", "10:30",
                  "--gender", "male", "--method", "astrology"])
