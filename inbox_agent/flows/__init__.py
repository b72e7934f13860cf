"""
Per-endpoint run stages driven by the run lifecycle controller.
"""
