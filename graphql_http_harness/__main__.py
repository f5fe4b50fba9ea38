from graphql_http_harness.main import main

main()
