"""
Data normalization layer for serial keys, CSV text and column names.

Everything that turns raw exports into consistent values lives here.
"""
