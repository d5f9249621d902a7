"""Test cases for the __main__ module."""

import os
import pytest
from click.testing import CliRunner

from bed2bsseq import __main__
from bed2bsseq.bsseq import BSseq


@pytest.fixture
def runner() -> CliRunner:
    """Fixture for invoking command-line interfaces."""
    return CliRunner()


def test_main_succeeds(runner: CliRunner) -> None:
    """It exits with a status code of zero."""
    result = runner.invoke(__main__.main, ["--help"])
    assert result.exit_code == 0


def test_get_output_prefix() -> None:
    """Test get_output_prefix."""

    assert __main__.get_output_prefix("data/merged.bed.gz") == "data/merged"
    assert __main__.get_output_prefix("data/merged.bed") == "data/merged"
    assert __main__.get_output_prefix("data/merged.tsv") == "data/merged.tsv"
    assert __main__.get_output_prefix("data/merged.bed", "out/x") == "out/x"


def test_validate_output(tmp_path) -> None:
    """Test validate_output with and without existing files."""

    prefix = str(tmp_path / "merged")
    __main__.validate_output(prefix, overwrite=False)

    (tmp_path / "merged.M.npz").touch()
    __main__.validate_output(prefix, overwrite=True)
    with pytest.raises(ValueError, match="--overwrite not specified"):
        __main__.validate_output(prefix, overwrite=False)


def test_validate_output_unwritable(tmp_path) -> None:
    """Test validate_output raises ValueError for an unwritable directory."""
    locked = tmp_path / "locked"
    locked.mkdir()
    os.chmod(locked, 0o500)

    try:
        if os.access(locked, os.W_OK):
            pytest.skip("Running with permissions that ignore directory modes")
        with pytest.raises(ValueError, match="Output path is not writable"):
            __main__.validate_output(str(locked / "merged"), overwrite=False)
    finally:
        os.chmod(locked, 0o755)


@pytest.mark.parametrize("how", ["pandas", "polars"])
def test_main(runner: CliRunner, biscuit_bed, how) -> None:
    """Test main() call, which runs everything, with some accepted defaults."""

    result = runner.invoke(
        __main__.main, ["--input-bed", biscuit_bed, "--how", how, "--verbose"]
    )

    print(result.output)
    assert result.exit_code == 0, f"Failed with: {result.output}"
    assert "Run complete." in result.output

    prefix = biscuit_bed[: -len(".bed")]
    bsseq = BSseq.load(prefix)
    assert bsseq.shape == (3, 2)
    assert bsseq.sample_names == ["MCF7", "HCT116"]


def test_main_sparse_simplify(runner: CliRunner, headerless_bed, tmp_path) -> None:
    """Test --sparse, --simplify and explicit sample names."""

    prefix = str(tmp_path / "out")
    result = runner.invoke(
        __main__.main,
        [
            "--input-bed",
            headerless_bed,
            "--sample-names",
            "t.hg19,n.hg19",
            "--output-prefix",
            prefix,
            "--sparse",
            "--simplify",
        ],
    )

    assert result.exit_code == 0, f"Failed with: {result.output}"
    assert "sparse" in result.output
    assert BSseq.load(prefix).sample_names == ["t", "n"]


def test_main_existing_output(runner: CliRunner, biscuit_bed) -> None:
    """Test main refuses to overwrite outputs without --overwrite."""

    args = ["--input-bed", biscuit_bed]
    assert runner.invoke(__main__.main, args).exit_code == 0

    result = runner.invoke(__main__.main, args)
    assert result.exit_code != 0
    assert isinstance(result.exception, ValueError)

    result = runner.invoke(__main__.main, args + ["--overwrite"])
    assert result.exit_code == 0, f"Failed with: {result.output}"


def test_main_missing_sample_names(runner: CliRunner, headerless_bed) -> None:
    """Test main reports an error for a headerless BED without --sample-names."""

    result = runner.invoke(__main__.main, ["--input-bed", headerless_bed])

    assert result.exit_code == 1
    assert "Error: No sample names given" in result.output


@pytest.mark.parametrize("how", ["pandas", "polars"])
def test_main_context(runner: CliRunner, headerless_context_bed, tmp_path, how) -> None:
    """Test --context for a headerless BED that keeps its context columns."""

    prefix = str(tmp_path / "out")
    args = [
        "--input-bed",
        headerless_context_bed,
        "--sample-names",
        "t,n",
        "--output-prefix",
        prefix,
        "--how",
        how,
    ]
    result = runner.invoke(__main__.main, args)
    assert result.exit_code == 1
    assert "Error:" in result.output

    result = runner.invoke(__main__.main, args + ["--context"])
    assert result.exit_code == 0, f"Failed with: {result.output}"
    assert BSseq.load(prefix).shape == (3, 2)


def test_main_unparseable_coordinates(runner: CliRunner, tmp_path) -> None:
    """Test main reports polars parse errors instead of crashing."""

    bed = tmp_path / "broken.bed"
    bed.write_text("#chr\tstart\tend\ts.beta\ts.covg\nchr1\tabc\t101\t0.5\t4\n")

    result = runner.invoke(__main__.main, ["--input-bed", str(bed), "--how", "polars"])

    assert result.exit_code == 1
    assert "Error:" in result.output
