"""Constants for walrus-profiles."""

# Tags attached to every stored profile
CONTENT_TYPE = "application/json"
PROFILE_TYPE = "user-profile"

# Retention defaults
DEFAULT_EPOCHS = 3
DEFAULT_DELETABLE = True

# Walrus storage nodes can be slow to respond
DEFAULT_TIMEOUT = 60.0

DEFAULT_NETWORK = "testnet"

NETWORK_ENDPOINTS = {
    "testnet": {
        "publisher": "https://publisher.walrus-testnet.walrus.space",
        "aggregator": "https://aggregator.walrus-testnet.walrus.space",
    },
    # No public publisher on mainnet; publisher_url must be configured
    "mainnet": {
        "publisher": "",
        "aggregator": "https://aggregator.walrus-mainnet.walrus.space",
    },
}

# Environment variables
PRIVATE_KEY_ENV = "PRIVATE_KEY"
CONFIG_ENV = "WALRUS_PROFILES_CONFIG"
CONFIG_FILE = "walrus-profiles.yaml"

VERSION = "0.1.0"
