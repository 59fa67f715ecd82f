from __future__ import annotations

from unittest.mock import patch

from woo_translator.models.language import LanguageCode
from woo_translator.services.progress import LanguageProgressIndicator, ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch("sys.stdout.isatty", return_value=True):
        assert is_tty_enabled() is True
    with patch("sys.stdout.isatty", return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:
    def test_init_with_tty_enabled(self):
        with patch("woo_translator.services.progress.is_tty_enabled", return_value=True), \
             patch("woo_translator.services.progress.tqdm") as mock_tqdm:
            tracker = ProgressTracker(4, description="Translating")

            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=4,
                desc="Translating",
                unit="batch",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_batch_updates(self):
        with patch("woo_translator.services.progress.is_tty_enabled", return_value=True), \
             patch("woo_translator.services.progress.tqdm") as mock_tqdm:
            pbar = mock_tqdm.return_value
            with ProgressTracker(2) as tracker:
                tracker.start_batch(LanguageCode.GERMAN, 0)
                pbar.set_description.assert_called_with("Translating (de #1)")
                tracker.finish_batch()
                pbar.update.assert_called_once_with(1)
                tracker.set_postfix(cost="0.0100")
                pbar.set_postfix.assert_called_once_with(cost="0.0100")
            pbar.close.assert_called_once()
            assert tracker.current_batch == 1
            assert tracker.pbar is None

    def test_disabled_without_tty(self):
        with patch("woo_translator.services.progress.is_tty_enabled", return_value=False), \
             patch("woo_translator.services.progress.tqdm") as mock_tqdm:
            tracker = ProgressTracker(3)
            tracker.start_batch(LanguageCode.FRENCH, 0)
            tracker.finish_batch()
            tracker.close()
            mock_tqdm.assert_not_called()
            assert tracker.pbar is None
            assert tracker.current_batch == 1


class TestLanguageProgressIndicator:
    def test_prints_on_tty(self, capsys):
        with patch("woo_translator.services.progress.is_tty_enabled", return_value=True):
            indicator = LanguageProgressIndicator(2)
            indicator.start_language(LanguageCode.GERMAN, 3)
            indicator.finish_language(True, 3)
        out = capsys.readouterr().out
        assert "Language 1/2: German (3 rows)" in out
        assert "-> 3 rows ok" in out

    def test_silent_without_tty(self, capsys):
        with patch("woo_translator.services.progress.is_tty_enabled", return_value=False):
            indicator = LanguageProgressIndicator(1)
            indicator.start_language(LanguageCode.GERMAN, 3)
            indicator.finish_language(False, 0)
        assert capsys.readouterr().out == ""
