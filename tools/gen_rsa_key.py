import sys, os

# Allow running as a script without installing the package
sys.path.insert(0, os.path.abspath("src"))

from cosesign.config import KEY_PATH
from cosesign.crypto.digest import signer_public_key_hash
from cosesign.crypto.keyloader import ensure_signing_key, load_private_key, public_key_pem


def main() -> None:
    path = sys.argv[1] if len(sys.argv) > 1 else KEY_PATH
    ensure_signing_key(path)
    pk = load_private_key(path).public_key()
    pub_path = os.path.splitext(path)[0] + ".pub.pem"
    with open(pub_path, "wb") as f:
        f.write(public_key_pem(pk))
    print(f"Generated: {path}, {pub_path} (signer key hash {signer_public_key_hash(pk).hex()})")


if __name__ == "__main__":
    main()
