import sys

from meeta_mcp_proxy.main import main

sys.exit(main())
