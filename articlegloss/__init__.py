"""
ArticleGloss
Scientific and simple English glossing for fetched articles
"""

__version__ = "1.0.0"
