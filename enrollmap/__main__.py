from .gui_main import main

main()
