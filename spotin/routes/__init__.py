"""Cross-domain HTTP routes: live change stream and status automation"""
