"""Run the board application: python -m atomx"""

from atomx.board import BoardApp


def main() -> None:
    BoardApp().run()


if __name__ == "__main__":
    main()
