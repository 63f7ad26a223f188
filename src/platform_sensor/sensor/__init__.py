"""Platform sensors and the timer loops that drive them."""
