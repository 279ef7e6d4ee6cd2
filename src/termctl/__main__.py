from termctl.cli import main

main()
