"""Readers for Nitro containers, models, and joint, pattern and material animations."""