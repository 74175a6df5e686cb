from caching_proxy.cli import main

main()
