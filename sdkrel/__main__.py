from sdkrel.cli.app import main

main()
