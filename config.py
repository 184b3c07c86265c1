# Ticketing client configuration
# Values come from the environment; defaults target a local Hardhat node

import os

RPC_URL = os.environ.get('RPC_URL') or "http://127.0.0.1:8545"

# Deployed EventNFT contract
CONTRACT_ADDRESS = os.environ.get('CONTRACT_ADDRESS') or "0x52aaeeb1ac34415b434ba7101a5ce34fdd1045ea"

# Local key wallet when set, otherwise the node wallet at WALLET_RPC_URL is asked for accounts
WALLET_PRIVATE_KEY = os.environ.get('WALLET_PRIVATE_KEY')
WALLET_RPC_URL = os.environ.get('WALLET_RPC_URL') or RPC_URL

CONFIRMATION_TIMEOUT = int(os.environ.get('CONFIRMATION_TIMEOUT') or 300)

# Base URL encoded into ticket QR codes
TICKET_LINK_BASE = os.environ.get('TICKET_LINK_BASE') or "https://random-id.ngrok.io/token"

FLASK_PORT = int(os.environ.get('FLASK_PORT') or 5000)
SECRET_KEY = os.environ.get('SECRET_KEY') or 'your-secret-key-change-this-in-production'
