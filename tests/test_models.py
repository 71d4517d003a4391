import pytest
from pydantic import ValidationError

from multisource.models import (
    UNPRICED,
    AggregateResult,
    CanonicalOffer,
    Money,
    SourceStatusSnapshot,
    Unpriced,
)


def _offer(**overrides):
    data = {
        "source_name": "paytowin",
        "source_url": "https://www.paytowin.cl",
        "title": "Lightning Bolt",
    }
    data.update(overrides)
    return CanonicalOffer(**data)


def test_offer_defaults():
    offer = _offer()
    assert offer.price == UNPRICED
    assert offer.in_stock is False
    assert offer.condition == "N/A"
    assert offer.set_name == "N/A"
    assert offer.product_url is None
    assert not offer.is_priced


def test_offer_blank_descriptors_become_not_available():
    offer = _offer(condition="   ", set_name=None)
    assert offer.condition == "N/A"
    assert offer.set_name == "N/A"


def test_offer_requires_source_name():
    with pytest.raises(ValidationError):
        _offer(source_name="")


def test_offer_is_immutable():
    offer = _offer()
    with pytest.raises(ValidationError):
        offer.title = "Counterspell"


def test_money_rejects_negative_amount():
    with pytest.raises(ValidationError):
        Money(amount=-1)


def test_price_round_trips_through_discriminator():
    priced = _offer(price=Money(amount=1500))
    restored = CanonicalOffer.model_validate_json(priced.model_dump_json())
    assert isinstance(restored.price, Money)
    assert restored.price.amount == 1500
    assert restored.price.currency == "CLP"

    unpriced = CanonicalOffer.model_validate_json(_offer().model_dump_json())
    assert isinstance(unpriced.price, Unpriced)


def test_price_is_never_a_raw_string():
    with pytest.raises(ValidationError):
        _offer(price="$1.500")


def test_aggregate_status_summary():
    result = AggregateResult(
        query="bolt",
        source_statuses=[
            SourceStatusSnapshot(source_name="a", outcome="success", offer_count=2),
            SourceStatusSnapshot(source_name="b", outcome="blocked"),
        ],
    )
    summary = result.status_summary()
    assert summary["a"].offer_count == 2
    assert summary["b"].outcome == "blocked"
