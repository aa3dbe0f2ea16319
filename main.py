from address_exporter.main import main

if __name__ == '__main__':
    main()
