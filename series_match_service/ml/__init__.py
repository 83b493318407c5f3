"""Embedding, vector math and pattern features"""
