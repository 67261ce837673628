#!/usr/bin/env python3
"""
stolonrpc

Serves database operations over JSON-RPC until interrupted.
"""

import sys
from stolon_admin.libs.rpc_app import main


if __name__ == "__main__":
    sys.exit(main())
