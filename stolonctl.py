#!/usr/bin/env python3
"""
stolonctl

Reads and writes stolon cluster configuration in etcd or consul.
"""

import sys
from stolon_admin.libs.ctl_app import main


if __name__ == "__main__":
    sys.exit(main())
