from multisource.models import UNPRICED, CanonicalOffer, Money
from multisource.ranking import dedupe_within_source, rank_offers


def _offer(title, in_stock, amount=None, source="store", url=None, condition=None):
    return CanonicalOffer(
        source_name=source,
        source_url=f"https://{source}.test",
        title=title,
        price=Money(amount=amount) if amount is not None else UNPRICED,
        in_stock=in_stock,
        product_url=url,
        condition=condition,
    )


def test_in_stock_first_then_cheapest():
    a = _offer("A", in_stock=False, amount=1000)
    b = _offer("B", in_stock=True, amount=5000)
    c = _offer("C", in_stock=True, amount=2000)

    assert [o.title for o in rank_offers([a, b, c])] == ["C", "B", "A"]


def test_priced_beats_unpriced_within_stock_group():
    unpriced = _offer("unpriced", in_stock=True)
    priced = _offer("priced", in_stock=True, amount=99999)
    out_of_stock = _offer("oos", in_stock=False, amount=1)

    assert [o.title for o in rank_offers([unpriced, out_of_stock, priced])] == [
        "priced",
        "unpriced",
        "oos",
    ]


def test_ties_keep_dispatch_order():
    first = _offer("first", in_stock=True, amount=1500, source="paytowin")
    second = _offer("second", in_stock=True, amount=1500, source="catlotus")
    third = _offer("third", in_stock=True, amount=1500, source="lacripta")

    assert [o.title for o in rank_offers([first, second, third])] == ["first", "second", "third"]


def test_zero_price_sorts_as_cheapest():
    free = _offer("free", in_stock=True, amount=0)
    paid = _offer("paid", in_stock=True, amount=10)
    assert rank_offers([paid, free])[0].title == "free"


def test_dedupe_by_canonical_product_url():
    offers = [
        _offer("one", True, 100, url="https://www.store.test/products/bolt?_pos=1&_sid=a"),
        _offer("dup", True, 100, url="https://store.test/products/bolt/?_pos=2&_sid=b"),
        _offer("other condition", True, 80, url="https://store.test/products/bolt", condition="Lightly Played"),
        _offer("no url", True, 100),
        _offer("no url again", True, 100),
    ]

    assert [o.title for o in dedupe_within_source(offers)] == [
        "one",
        "other condition",
        "no url",
        "no url again",
    ]
