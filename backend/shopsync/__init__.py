"""
ShopSync - multi-tenant Shopify catalog ingestion
"""
__version__ = "1.0.0"
