import math

from churn_logit.utils import format_metrics, safe_divide


def test_format_metrics():
    assert format_metrics({"accuracy": 0.77673, "sensitivity": float("nan")}) == {
        "accuracy": "0.7767",
        "sensitivity": "nan",
    }


def test_safe_divide_returns_nan_on_zero():
    assert safe_divide(3, 4) == 0.75
    assert math.isnan(safe_divide(1, 0))
