from webvault.cli import main

main()
