from vpm_publish.cli.app import main

main()
