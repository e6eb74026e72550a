"""Stock domain - Inventory, products and recipes"""
