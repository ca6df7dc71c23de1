from stagekv.cli import main

main()
