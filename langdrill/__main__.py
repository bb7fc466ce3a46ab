from langdrill.cli import main

main()
