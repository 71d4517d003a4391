"""Magic Sur adapter: WordPress AJAX product search returning an HTML fragment."""

from __future__ import annotations

from multisource.adapters.base import SourceAdapter
from multisource.transport.base import UpstreamRequest


class MagicSurAdapter(SourceAdapter):
    shape = "html_search"
    expected_content = "html"
    zero_price_is_unpriced = False

    ajax_action = "aws_action"

    def build_request(self, query: str) -> UpstreamRequest:
        return UpstreamRequest(
            method="POST",
            url=f"{self.base_url}/wp-admin/admin-ajax.php",
            data={"action": self.ajax_action, "keyword": query},
            headers=self.request_headers(
                {
                    "Referer": f"{self.base_url}/",
                    "Origin": self.base_url,
                    "X-Requested-With": "XMLHttpRequest",
                }
            ),
        )
