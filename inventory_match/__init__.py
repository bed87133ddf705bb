"""
inventory_match — Product retrieval and matching for retail inventory.

Turns structured filter criteria and free-text vision-analysis output
into deterministic, ranked subsets of a product catalog.

Modules:
    engine      MatchEngine facade and the AI match pipeline
    filters     Boolean keyword and range filtering
    scoring     Name/color scoring and result ordering
    taxonomy    Synonym families and category code lookup
    feeds       CSV reading for the taxonomy feeds
    colors      Color-name palette and RGB distance
    swatch      Average color of a product photo
    models      Product, filter and analysis data types
"""

__version__ = "1.0.0"
