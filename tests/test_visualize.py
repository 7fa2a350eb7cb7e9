from simulator import Statistics
from visualize import plot_associativity_sweep, plot_hit_miss_rate, plot_statistics


def test_plot_statistics(tmp_path):
    out = tmp_path / "plots" / "stats.png"
    plot_statistics(Statistics(5, 3, 1), str(out))
    assert out.stat().st_size > 0


def test_plot_statistics_empty_run(tmp_path):
    out = tmp_path / "empty.png"
    plot_statistics(Statistics(), str(out))
    assert out.exists()


def test_plot_hit_miss_rate(tmp_path):
    out = tmp_path / "rate.png"
    plot_hit_miss_rate(0.75, str(out))
    assert out.exists()


def test_plot_associativity_sweep(tmp_path):
    out = tmp_path / "sweep.png"
    plot_associativity_sweep([(1, Statistics(2, 8, 6)), (2, Statistics(5, 5, 3))], str(out))
    assert out.exists()
