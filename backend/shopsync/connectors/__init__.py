"""
Remote source connectors
"""
from shopsync.connectors.shopify_connector import ShopifyConnector, ShopifyAPIError

__all__ = ['ShopifyConnector', 'ShopifyAPIError']
