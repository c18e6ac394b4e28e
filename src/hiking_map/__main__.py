from hiking_map.server import main

main()
