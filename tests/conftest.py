import pytest

BED_HEADER = "#chr\tstart\tend\tMCF7.beta\tMCF7.covg\tMCF7.context\tHCT116.beta\tHCT116.covg\tHCT116.context\n"
BED_ROWS = [
    "chr11\t100\t101\t0.5\t10\tCG\t1.0\t2\tCG\n",
    "chr11\t200\t201\t.\t.\t.\t0.25\t8\tCG\n",
    "chr11\t300\t301\t0.0\t0\tCG\t.\t.\t.\n",
    "chr12\t50\t51\t1.0\t3\tCG\t0.0\t1\tCG\n",
]


@pytest.fixture
def biscuit_bed(tmp_path) -> str:
    """A small two-sample Biscuit BED with a header line."""
    path = tmp_path / "merged.bed"
    path.write_text(BED_HEADER + "".join(BED_ROWS))
    return str(path)


@pytest.fixture
def headerless_bed(tmp_path) -> str:
    """The same calls without a header or context columns."""
    path = tmp_path / "headerless.bed"
    rows = []
    for row in BED_ROWS:
        fields = row.rstrip("\n").split("\t")
        rows.append("\t".join(fields[:5] + fields[6:8]) + "\n")
    path.write_text("".join(rows))
    return str(path)


@pytest.fixture
def headerless_context_bed(tmp_path) -> str:
    """The same calls without a header, keeping the context columns."""
    path = tmp_path / "headerless_context.bed"
    path.write_text("".join(BED_ROWS))
    return str(path)


@pytest.fixture
def numeric_contig_bed(tmp_path) -> str:
    """A BED whose first rows have numeric contigs and integer betas.

    150 rows on contig "1" with beta 1, then one row on contig "X" with beta 0.5.
    """
    path = tmp_path / "numeric_contig.bed"
    rows = [f"1\t{i * 10}\t{i * 10 + 1}\t1\t4\n" for i in range(150)]
    rows.append("X\t500\t501\t0.5\t6\n")
    path.write_text("#chr\tstart\tend\tS1.beta\tS1.covg\n" + "".join(rows))
    return str(path)
