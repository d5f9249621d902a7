"""bed2bsseq: Convert Biscuit BED methylation calls into count matrices.

bed2bsseq turns a flat table of per-position, per-sample methylation calls
(chr, start, end, then a beta value and a coverage column per sample) into a
BSseq container: one single-base genomic position per row, a matrix of
methylated-read counts (M) and a matrix of total coverage (Cov), with one
column per sample.

Main Components:
    make_bsseq: Core function converting a pandas or polars table into a BSseq.
    BiscuitParams: Column names, table backend, fill policy and sample metadata.
    BSseq: The output container, with save()/load() helpers.

Example:
    Command-line usage::

        $ bed2bsseq --input-bed MCF7_Cunha_chr11p15.bed.gz --sparse --simplify

    Python API usage::

        from bed2bsseq.io import check_biscuit_bed, load_biscuit_bed
        from bed2bsseq.functions import make_bsseq

        params = check_biscuit_bed("merged.bed.gz", how="polars")
        tbl = load_biscuit_bed("merged.bed.gz", params)
        bsseq = make_bsseq(tbl, params, simplify=True)

        bsseq.M, bsseq.Cov  # positions x samples

Memory:
    The whole table is converted in one pass. Large BEDs should be split by
    the caller, e.g. by loading one region at a time (--region).
"""

__version__ = "0.1"
