"""Agent boundary: typed replies from the generative-language model and the
market-data tools it may call.
"""
