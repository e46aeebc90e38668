# Loads the cartridge reset hooks the same way a downstream suite would.
pytest_plugins = ["cart_fixtures", "pytester"]
