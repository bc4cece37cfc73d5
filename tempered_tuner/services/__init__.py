"""Services that drive audio through the tuning pipeline."""
