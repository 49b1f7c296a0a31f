from compliq_mcp.server import main

main()
