# Import modules
import click
import os
import re
import sys
import time

# Third party modules
import polars as pl

from bed2bsseq.exceptions import Bed2BsseqError
from bed2bsseq.functions import make_bsseq
from bed2bsseq.io import check_biscuit_bed, load_biscuit_bed

BED_EXTENSION = re.compile(r"\.bed(\.gz)?$")
OUTPUT_SUFFIXES = (".M.npz", ".Cov.npz", ".positions.tsv", ".pdata.tsv")


def get_output_prefix(input_bed: str, output_prefix: str | None = None) -> str:
    """Return the output prefix: the one given, or the input path minus .bed[.gz]."""
    if output_prefix:
        return output_prefix
    return BED_EXTENSION.sub("", input_bed)


def validate_output(output_prefix: str, overwrite: bool) -> None:
    """Validate the output files.

    Raises
    ----------
    ValueError: If an output exists without --overwrite, or the directory is not writable.
    """
    output_dir = os.path.dirname(os.path.abspath(output_prefix))
    if not os.access(output_dir, os.W_OK):
        raise ValueError(f"Output path is not writable: {output_dir}")

    for suffix in OUTPUT_SUFFIXES:
        output_file = output_prefix + suffix
        if os.path.exists(output_file):
            if overwrite and os.access(output_file, os.W_OK):
                print(
                    f"\t\tOutput file exists and --overwrite specified. Will overwrite: {output_file}"
                )
            else:
                raise ValueError(
                    f"Output file exists and --overwrite not specified or not writable: {output_file}"
                )


@click.command(
    help="Convert a Biscuit BED of beta values and coverage into methylated-read and coverage count matrices."
)
@click.version_option()
@click.option(
    "--input-bed",
    help="Input Biscuit BED (plain, gzipped, or bgzipped + tabix-indexed for --region).",
    required=True,
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True),
)
@click.option(
    "--sample-names",
    help="A comma-separated list of sample names, in column order. Defaults to the names in the BED header.",
    required=False,
    default=None,
)
@click.option(
    "--output-prefix",
    help="Prefix for the output files (default: input path without .bed[.gz]).",
    required=False,
    default=None,
)
@click.option(
    "--how",
    help="Table library used to hold the BED (default = pandas).",
    type=click.Choice(["pandas", "polars"]),
    default="pandas",
)
@click.option(
    "--region",
    # Keeps large BEDs within memory
    help="Only convert this region, e.g. chr11:1-2000000 (needs a tabix index).",
    required=False,
    default=None,
)
@click.option(
    "--context/--no-context",
    help="Each sample also has a .context column (default: detect from the header).",
    default=None,
)
@click.option("--sparse", help="Hold the matrices as sparse matrices.", is_flag=True)
@click.option(
    "--simplify", help="Simplify sample names (drop .hg19 and similar).", is_flag=True
)
@click.option("--verbose", help="Verbose output.", is_flag=True)
@click.option("--overwrite", help="Overwrite output files if they exist.", is_flag=True)
def main(
    input_bed: str,
    sample_names: str | None,
    output_prefix: str | None,
    how: str,
    region: str | None,
    context: bool | None,
    sparse: bool,
    simplify: bool,
    verbose: bool,
    overwrite: bool,
) -> None:
    """Bed2BSseq."""
    time_start = time.time()
    output_prefix = get_output_prefix(input_bed, output_prefix)

    # Print run information
    print(f"Input BED: {input_bed}")
    print(f"Output prefix: {output_prefix}")
    print(f"Backend: {how} ({'sparse' if sparse else 'dense'})")
    if region:
        print(f"Region: {region}")

    validate_output(output_prefix=output_prefix, overwrite=overwrite)

    try:
        params = check_biscuit_bed(
            input_bed,
            sample_names=sample_names.split(",") if sample_names else None,
            how=how,
            sparse=sparse,
            has_context=context,
        )
        print(f"Samples: {', '.join(params.sample_names)}")

        print(f"\nLoading: {input_bed}")
        tbl = load_biscuit_bed(input_bed, params, region=region, verbose=verbose)
        print(f"\nTime elapsed: {time.time() - time_start:.2f} seconds")

        print("\nBuilding M and Cov matrices")
        bsseq = make_bsseq(tbl, params, simplify=simplify, verbose=verbose)
    except (
        Bed2BsseqError,
        ValueError,
        FileNotFoundError,
        pl.exceptions.PolarsError,
    ) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"\t{bsseq!r}")

    print(f"\nWriting matrices to: {output_prefix}.*")
    for path in bsseq.save(output_prefix):
        print(f"\t{path}")

    print(f"\nTotal time elapsed: {time.time() - time_start:.2f} seconds")
    print("\nRun complete.")


if __name__ == "__main__":
    main(prog_name="bed2bsseq")  # pylint: disable=no-value-for-parameter
