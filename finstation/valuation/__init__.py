"""Valuation: discounting, unlevered FCF, Gordon terminal value, IRR bisection.

- discount.py: discount factors and present value
- fcff.py: unlevered free cash flow for one year
- terminal.py: Gordon growth terminal value
- irr.py: bounded bisection IRR estimate
- calculator.py: valuate() over a projected snapshot sequence
"""
