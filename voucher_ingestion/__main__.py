import sys

from voucher_ingestion.cli import main

sys.exit(main())
