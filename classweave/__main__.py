"""Run the classweave command line tool."""

from classweave.tool.classweave import main

if __name__ == "__main__":
    main()
