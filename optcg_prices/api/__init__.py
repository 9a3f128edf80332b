"""OPTCG Price Lookup — HTTP layer"""
