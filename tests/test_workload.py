import pytest

from dnsstress.models import Query, RecordType
from dnsstress.workload import (
    QueryError,
    QueryFileError,
    dropped_queries,
    load_queries,
    partition_queries,
    queries_from_domains,
)


def make_queries(n):
    return [Query(f"host{i}.example.", RecordType.A) for i in range(n)]


@pytest.mark.parametrize("n,c", [(10, 1), (10, 2), (10, 5), (10, 10), (12, 4)])
def test_partition_is_disjoint_cover_when_divisible(n, c):
    queries = make_queries(n)
    partitions = partition_queries(queries, c)

    assert len(partitions) == c
    assert all(len(p) == n // c for p in partitions)
    assert [q for p in partitions for q in p] == queries


@pytest.mark.parametrize("n,c", [(10, 3), (7, 2), (11, 10)])
def test_partition_drops_trailing_remainder(n, c):
    queries = make_queries(n)
    partitions = partition_queries(queries, c)

    assigned = [q for p in partitions for q in p]
    assert assigned == queries[:n - n % c]
    assert dropped_queries(queries, c) == n % c


def test_partition_with_fewer_queries_than_workers_is_all_empty():
    queries = make_queries(3)
    partitions = partition_queries(queries, 5)

    assert partitions == [[]] * 5
    assert dropped_queries(queries, 5) == 3


def test_partition_rejects_zero_workers():
    with pytest.raises(ValueError):
        partition_queries(make_queries(3), 0)


def test_queries_from_domains_default_to_a():
    queries = queries_from_domains(["a.example.", "b.example."])
    assert queries == [
        Query("a.example.", RecordType.A),
        Query("b.example.", RecordType.A),
    ]


def test_load_queries(tmp_path):
    data = tmp_path / "queries.txt"
    data.write_text(
        "# sample workload\n"
        "www.apple.com.\tA\n"
        "\n"
        "frycomm.com.s9b2.psmtp.com.   mx\n"
        "170.44.153.187.in-addr.arpa.\tPTR\n"
    )

    assert load_queries(data) == [
        Query("www.apple.com.", RecordType.A),
        Query("frycomm.com.s9b2.psmtp.com.", RecordType.MX),
        Query("170.44.153.187.in-addr.arpa.", RecordType.PTR),
    ]


def test_load_queries_missing_file(tmp_path):
    with pytest.raises(QueryFileError, match="Unable to read"):
        load_queries(tmp_path / "missing.txt")


def test_load_queries_malformed_line(tmp_path):
    data = tmp_path / "queries.txt"
    data.write_text("www.apple.com. A\njustadomain.\n")

    with pytest.raises(QueryFileError, match=":2:"):
        load_queries(data)


def test_load_queries_unknown_type(tmp_path):
    data = tmp_path / "queries.txt"
    data.write_text("www.apple.com. NOPE\n")

    with pytest.raises(QueryFileError, match="Unknown record type"):
        load_queries(data)


@pytest.mark.parametrize("domain", ["bad..example.", "x" * 70 + ".example."])
def test_queries_from_domains_rejects_invalid_names(domain):
    with pytest.raises(QueryError, match="invalid domain"):
        queries_from_domains(["ok.example.", domain])


def test_load_queries_rejects_invalid_name(tmp_path):
    data = tmp_path / "queries.txt"
    data.write_text("ok.example. A\nbad..example. MX\n")

    with pytest.raises(QueryFileError, match=":2: invalid domain"):
        load_queries(data)
