"""
Tests for the price history file cache.
"""

from datetime import date

from stockfolio.data.providers import CachedPriceProvider, FileCache


START = date(2024, 1, 1)
END = date(2024, 1, 31)


class TestFileCache:
    """Tests for FileCache."""

    def test_miss(self, tmp_path):
        assert FileCache(tmp_path).get_history("AAPL", START, END) is None

    def test_save_and_get(self, tmp_path, sample_price_records):
        cache = FileCache(tmp_path)
        cache.save_history("aapl", START, END, sample_price_records)

        assert (tmp_path / "prices" / "AAPL_2024-01-01_2024-01-31.csv").exists()
        assert cache.get_history("AAPL", START, END) == sample_price_records

    def test_keyed_by_range(self, tmp_path, sample_price_records):
        cache = FileCache(tmp_path)
        cache.save_history("AAPL", START, END, sample_price_records)

        assert cache.get_history("AAPL", START, date(2024, 2, 1)) is None

    def test_corrupt_file_is_a_miss(self, tmp_path):
        cache = FileCache(tmp_path)
        (tmp_path / "prices" / "AAPL_2024-01-01_2024-01-31.csv").write_text("garbage\n1\n")

        assert cache.get_history("AAPL", START, END) is None

    def test_clear(self, tmp_path, sample_price_records):
        cache = FileCache(tmp_path)
        cache.save_history("AAPL", START, END, sample_price_records)

        cache.clear()

        assert cache.get_history("AAPL", START, END) is None
        assert cache.prices_dir.exists()


class TestCachedPriceProvider:
    """Tests for CachedPriceProvider."""

    def test_second_fetch_served_from_cache(
        self, tmp_path, static_provider_cls, sample_price_records
    ):
        underlying = static_provider_cls({"AAPL": sample_price_records})
        provider = CachedPriceProvider(underlying, FileCache(tmp_path))

        first = provider.get_history("AAPL", START, END)
        second = provider.get_history("AAPL", START, END)

        assert first == second == sample_price_records
        assert len(underlying.calls) == 1
        assert provider.name == "Cached(Static)"
