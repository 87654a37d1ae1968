from enumsync.cli import main

main()
