import pytest

from churn_logit.data import split_data
from churn_logit.exceptions import MissingColumnError


def test_same_seed_reproduces_partition(customers):
    first = split_data(customers, ratio=0.7, seed=789, strata="churn")
    second = split_data(customers, ratio=0.7, seed=789, strata="churn")

    assert first.train.index.equals(second.train.index)
    assert first.test.index.equals(second.test.index)


def test_different_seed_changes_partition(customers):
    first = split_data(customers, ratio=0.7, seed=789, strata="churn")
    second = split_data(customers, ratio=0.7, seed=790, strata="churn")

    assert set(first.train.index) != set(second.train.index)


def test_subsets_are_disjoint_and_complete(split, customers):
    train_rows = set(split.train.index)
    test_rows = set(split.test.index)

    assert not train_rows & test_rows
    assert train_rows | test_rows == set(customers.index)


@pytest.mark.parametrize("ratio", [0.5, 0.7, 0.8])
def test_train_size_within_one_row_of_ratio(customers, ratio):
    split = split_data(customers, ratio=ratio, seed=1, strata="churn")

    assert abs(len(split.train) - ratio * len(customers)) <= 1


def test_stratification_preserves_positive_rate(split, customers):
    overall = (customers["churn"] == "Yes").mean()
    summary = split.summary("Yes")

    assert summary["train_positive_rate"] == pytest.approx(overall, abs=0.02)
    assert summary["test_positive_rate"] == pytest.approx(overall, abs=0.02)


@pytest.mark.parametrize("ratio", [0, 1, 1.5, -0.2])
def test_invalid_ratio_raises(customers, ratio):
    with pytest.raises(ValueError):
        split_data(customers, ratio=ratio, seed=789, strata="churn")


def test_missing_strata_column_raises(customers):
    with pytest.raises(MissingColumnError):
        split_data(customers, ratio=0.7, seed=789, strata="contract")
