import logging
import subprocess
import sys

import pytest

from forma import __version__
from forma.cli import main
from forma.codec import read_records, write_records
from forma.schema import SeriesRecord

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.getLogger("forma").handlers.clear()


DETECTOR_MODULE = '''
class Detector:
    def compute(self, series, covariate, est_window, long_block, window):
        lo, hi = est_window
        return list(series[lo:hi + 1]), list(covariate[lo:hi + 1]), [1.0] * (hi - lo + 1)
'''


def test_cli_help_module():
    # Ensure the module entrypoint runs and prints help
    proc = subprocess.run(
        [sys.executable, "-m", "forma.cli", "--help"], capture_output=True, text=True
    )
    assert proc.returncode == 0
    assert "FORMA" in proc.stdout or "usage:" in proc.stdout.lower()


def test_version(capsys):
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == __version__


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage:" in capsys.readouterr().out.lower()


def test_missing_input(tmp_path, capsys):
    assert main(["inspect", str(tmp_path / "nope.frma")]) == 1
    assert "not found" in capsys.readouterr().out


def test_full_workflow(
    tmp_path, monkeypatch, capsys,
    ndvi_chunks, rain_chunks, vcf_chunks, country_chunks, fire_observations,
):
    """series -> fires -> run over record files, then inspect the outputs."""
    paths = {name: tmp_path / f"{name}.frma" for name in
             ("ndvi_chunks", "rain_chunks", "vcf", "country", "fire_obs")}
    write_records(paths["ndvi_chunks"], ndvi_chunks)
    write_records(paths["rain_chunks"], rain_chunks)
    write_records(paths["vcf"], vcf_chunks)
    write_records(paths["country"], country_chunks)
    write_records(paths["fire_obs"], fire_observations)

    config = tmp_path / "forma.toml"
    config.write_text(
        '[forma]\n'
        'est_start = "2006-01-01"\n'
        'est_end = "2006-03-01"\n'
        'window_dims = [2, 2]\n'
        'long_block = 1\n'
        'window = 1\n'
    )
    (tmp_path / "stub_detector.py").write_text(DETECTOR_MODULE)
    monkeypatch.syspath_prepend(str(tmp_path))

    ndvi, rain, fire = tmp_path / "ndvi.frma", tmp_path / "rain.frma", tmp_path / "fire.frma"
    assert main(["series", str(paths["ndvi_chunks"]), "--config", str(config), "--out", str(ndvi)]) == 0
    assert main(["series", str(paths["rain_chunks"]), "--out", str(rain)]) == 0
    assert main(["fires", str(paths["fire_obs"]), "--config", str(config), "--out", str(fire)]) == 0

    records = list(read_records(ndvi))
    assert len(records) == 4
    assert all(isinstance(r, SeriesRecord) for r in records)

    out = tmp_path / "forma.tsv"
    code = main([
        "run", str(config),
        "--ndvi", str(ndvi),
        "--rain", str(rain),
        "--vcf", str(paths["vcf"]),
        "--country", str(paths["country"]),
        "--fire", str(fire),
        "--trend", "stub_detector:Detector",
        "--out", str(out),
    ])
    assert code == 0
    lines = out.read_text().splitlines()
    assert len(lines) == 9
    assert all(line.startswith("500\t32\t") for line in lines)
    for line in lines:
        prefix = line.split("\t")
        assert len(prefix) == 5
        assert len(prefix[4].split(" ")) == 22

    capsys.readouterr()
    assert main(["inspect", str(fire), "--head", "0"]) == 0
    assert "SeriesRecord: 1" in capsys.readouterr().out


def test_bad_detector_spec(tmp_path, vcf_chunks, capsys):
    config = tmp_path / "forma.yaml"
    config.write_text("t_res: '32'\n")
    empty = tmp_path / "empty.frma"
    write_records(empty, [])
    code = main([
        "run", str(config),
        "--ndvi", str(empty), "--rain", str(empty), "--vcf", str(empty),
        "--country", str(empty), "--fire", str(empty),
        "--trend", "no_colon_here",
        "--out", str(tmp_path / "out.tsv"),
    ])
    assert code == 2
    assert "trend detector" in capsys.readouterr().out
