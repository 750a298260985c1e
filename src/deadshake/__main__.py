from deadshake.cli import main

main()
