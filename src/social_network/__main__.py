from social_network.main import main

main()
