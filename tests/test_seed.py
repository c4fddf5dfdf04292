from seed import SAMPLE_PRODUCTS, run_queries, seed_catalog


def test_seed_catalog_replaces_existing(store, product_data):
    store.insert([product_data])

    assert seed_catalog(store) == len(SAMPLE_PRODUCTS)
    assert {p.name for p in store.find_all()} == {p["name"] for p in SAMPLE_PRODUCTS}


def test_run_queries_report(seeded_store, capsys):
    run_queries(seeded_store)
    out = capsys.readouterr().out

    assert "Total products: 4" in out
    assert "- iPhone 15 Pro (Apple) - $999.0" in out
    assert "- Nike Air Max 270: Black/White US 12 (0)" in out
    assert "  * Red/Black US 10 - Stock: 32 (SKU: NIKE-AM270-RB-10)" in out
    assert "- Stainless Steel Cookware Set: 10-Piece (15)" in out
    assert "- Electronics: $999.00 (1 products)" in out
    assert "- Books: $12.99 (1 products)" in out
    assert "- The Great Gatsby (Books): 180 total units" in out
    assert "Stock updated: Nike Air Max 270, NIKE-AM270-BW-9 -> 40" in out
    assert out.count("total units across") == 3

    nike = seeded_store.find_by_category("Sports")[0]
    assert nike.variants[0].stock == 40


def test_report_lists_inactive_sports_products(seeded_store, product_data, capsys):
    seeded_store.insert([dict(product_data, isActive=False)])

    run_queries(seeded_store)
    details = capsys.readouterr().out.split("4. PRODUCTS WITH VARIANT DETAILS:")[1].split("5.")[0]

    assert "- Yoga Mat:" in details
    assert "- Nike Air Max 270:" in details
