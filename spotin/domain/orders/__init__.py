"""Orders domain - Session line items, barista queue, counter sales"""
