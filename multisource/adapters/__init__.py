"""Source adapter variants, one per upstream response shape."""

from multisource.adapters.base import SourceAdapter
from multisource.adapters.catlotus import CatlotusAdapter
from multisource.adapters.magicsur import MagicSurAdapter
from multisource.adapters.shopify import ShopifySuggestAdapter
from multisource.adapters.tcgmatch import TCGMatchAdapter
from multisource.adapters.woocommerce import WooCommerceAdapter

__all__ = [
    "SourceAdapter",
    "ShopifySuggestAdapter",
    "WooCommerceAdapter",
    "TCGMatchAdapter",
    "CatlotusAdapter",
    "MagicSurAdapter",
]
