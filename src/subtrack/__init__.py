"""Subscription tracking: renewal dates, budgets and spending analytics."""

__version__ = "0.1.0"


# Import main lazily so domain modules can be imported without click
def __getattr__(name):
    if name == "main":
        from subtrack.cli.main import main
        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
