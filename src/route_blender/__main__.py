from route_blender.cli import main

main()
