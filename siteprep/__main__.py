from siteprep.cli import main

main()
