import os
from dotenv import load_dotenv

load_dotenv()

# Local signer key (PEM, RSA 2048); generated by tools/gen_rsa_key.py
KEY_PATH = os.getenv("COSESIGN_KEY_PATH", "keys/signer_rsa2048_sk.pem")

OUTPUT_FORMAT = os.getenv("COSESIGN_OUTPUT_FORMAT", "cosesign1")  # raw|cosesign1
OUTPUT_FORMATS = ("raw", "cosesign1")

# Carry the signer's DER public key in unprotected header label 248
EMBED_PUBKEY = os.getenv("COSESIGN_EMBED_PUBKEY", "true").lower() == "true"

LOG_LEVEL = os.getenv("COSESIGN_LOG_LEVEL", "INFO").upper()
