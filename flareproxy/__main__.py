from flareproxy.server import main

main()
