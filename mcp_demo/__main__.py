from mcp_demo.server import main

main()
