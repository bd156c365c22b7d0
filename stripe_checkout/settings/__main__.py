"""
Outil opérateur pour la table des réglages.

Usage:
    python -m stripe_checkout.settings show
    python -m stripe_checkout.settings set stripe_secret_key sk_live_...
    python -m stripe_checkout.settings generate-key
"""
import argparse
import sys

from stripe_checkout.settings import SECRET_KEYS, load_settings, save_setting
from stripe_checkout.settings.crypto import generate_key

def _masked(name: str, value) -> str:
    if name in SECRET_KEYS:
        return "****" + str(value)[-4:] if value else ""
    return str(value)

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="python -m stripe_checkout.settings")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("show")
    set_cmd = sub.add_parser("set")
    set_cmd.add_argument("name")
    set_cmd.add_argument("value")
    sub.add_parser("generate-key")
    args = parser.parse_args(argv)

    if args.command == "generate-key":
        print(generate_key())
        return 0
    if args.command == "show":
        for name, value in load_settings().model_dump().items():
            print(f"{name} = {_masked(name, value)}")
        return 0
    try:
        ok = save_setting(args.name, args.value)
    except (ValueError, RuntimeError) as e:
        print(f"Erreur: {e}", file=sys.stderr)
        return 2
    print("ok" if ok else "échec de l'écriture")
    return 0 if ok else 1

if __name__ == "__main__":
    sys.exit(main())
