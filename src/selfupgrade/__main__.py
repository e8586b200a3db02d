from selfupgrade.cli import main

main()
