"""HTML builders for listing and detail page fixtures."""

from __future__ import annotations

import httpx

BASE_URL = "https://minutes.test/uae-en/search/"
START_URL = f"{BASE_URL}?page=1"


def card(product_id: str, tokens: list[str] | None = None, image: bool = True) -> str:
    if tokens is None:
        tokens = ["UAE", f"Product {product_id}", "500g", "AED", "12.99"]
    img = f'<img src="https://f.nooncdn.com/p/pzsku/{product_id}.jpg" alt="">' if image else ""
    lines = "".join(f"<div>{t}</div>" for t in tokens)
    return f'<a href="/uae-en/now-product/{product_id}/">{img}{lines}</a>'


def next_link(href: str, disabled: bool = False) -> str:
    flag = "true" if disabled else "false"
    return f'<a role="button" aria-label="Next page" rel="next" aria-disabled="{flag}" href="{href}">Next</a>'


def listing_page(cards: list[str], next_href: str | None = None, next_disabled: bool = False) -> str:
    nav = next_link(next_href, next_disabled) if next_href is not None else ""
    return (
        "<html><body>"
        f'<div class="catalogList_instantCatalogList__gUTOP">{"".join(cards)}</div>'
        f"<nav>{nav}</nav>"
        "</body></html>"
    )


def paged_site(pages: dict[int, str]) -> httpx.MockTransport:
    """Serve `pages[n]` for `?page=n`; 404 for anything else."""

    def handler(request: httpx.Request) -> httpx.Response:
        number = int(request.url.params.get("page", "1"))
        if number not in pages:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text=pages[number])

    return httpx.MockTransport(handler)


class RecordingSleep:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


PRIMARY_DETAIL = """
<html><body>
<div class="layout_pageWrapper__W_ZgS">
  <div>Header</div>
  <div>
    <div><h1>Fresh Tomatoes</h1></div>
    <div class="ProductDetails_infoWrapper__a1B2"><div>500g</div><div>UAE</div></div>
    <div><img src="https://f.nooncdn.com/p/pzsku/ZTOM/45/1.jpg" alt="gallery"></div>
    <div><p>Juicy vine tomatoes.</p><ul><li>Rich in vitamin C</li><li>Locally sourced</li></ul></div>
  </div>
  <div><span>AED 12.99</span><span>15.50</span><span>Arrives in 15 mins</span></div>
</div>
</body></html>
"""

ALTERNATE_DETAIL = """
<html><body>
<h1>Red Apples</h1>
<div style="margin-top: 20px; color: rgb(126, 133, 155);">
  <p>Crisp red apples from Italy.</p>
  <ul><li>Sweet</li><li>Crunchy</li></ul>
</div>
<img src="https://cdn.example/banner.jpg">
</body></html>
"""

HEURISTIC_DETAIL = """
<html><body>
<h1>Bananas</h1>
<div><div>Short</div><div>These bananas are a tropical fruit packed with potassium.</div></div>
<ol><li> </li></ol>
<ul><li>Ripe</li><li>Yellow</li></ul>
<p>Delivery <b>Arrives in 20 mins</b></p>
</body></html>
"""
