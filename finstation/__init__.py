"""finstation: driver-based scenario projection and valuation.

- forecasting: driver sets, three-statement projection, statement identities
- valuation: discounting, FCFF, terminal value, IRR, the calculator
- scenarios: scenario model, store, import from actuals, persistence
"""
