"""WalletScreen - blacklist proximity screening for wallet onboarding."""

__version__ = "1.0.0"
