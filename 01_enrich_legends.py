# 01_enrich_legends.py
from enrich_core import main

if __name__ == "__main__":
    raise SystemExit(main())
