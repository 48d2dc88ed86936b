"""GraphQL documents for the Shopify Admin API."""

ORDERS_QUERY = """
query getOrders($first: Int!, $after: String, $query: String!) {
  orders(first: $first, after: $after, query: $query, sortKey: CREATED_AT) {
    edges {
      node {
        id
        createdAt
        displayFinancialStatus
        lineItems(first: 250) {
          edges {
            node {
              quantity
              product { id }
              originalTotalSet { shopMoney { amount } }
            }
          }
          pageInfo { hasNextPage endCursor }
        }
      }
    }
    pageInfo { hasNextPage endCursor }
  }
}
"""

ORDER_LINE_ITEMS_QUERY = """
query getOrderLineItems($id: ID!, $first: Int!, $after: String) {
  order(id: $id) {
    lineItems(first: $first, after: $after) {
      edges {
        node {
          quantity
          product { id }
          originalTotalSet { shopMoney { amount } }
        }
      }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""

PRODUCTS_QUERY = """
query getProducts($first: Int!, $after: String) {
  products(first: $first, after: $after, sortKey: ID) {
    edges {
      node { id title tags totalInventory createdAt }
    }
    pageInfo { hasNextPage endCursor }
  }
}
"""

COLLECTION_QUERY = """
query getCollection($id: ID!) {
  collection(id: $id) {
    id
    title
    sortOrder
    productsCount { count }
  }
}
"""

COLLECTION_PRODUCTS_QUERY = """
query getCollectionProducts($id: ID!, $first: Int!, $after: String) {
  collection(id: $id) {
    products(first: $first, after: $after, sortKey: COLLECTION_DEFAULT) {
      edges {
        node { id title tags totalInventory createdAt }
      }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""

UPDATE_PRODUCT_TAGS_MUTATION = """
mutation updateProduct($input: ProductInput!) {
  productUpdate(input: $input) {
    product { id tags }
    userErrors { field message }
  }
}
"""

COLLECTION_REORDER_MUTATION = """
mutation collectionReorderProducts($id: ID!, $moves: [MoveInput!]!) {
  collectionReorderProducts(id: $id, moves: $moves) {
    job { id done }
    userErrors { field message }
  }
}
"""

JOB_QUERY = """
query getJob($id: ID!) {
  job(id: $id) { id done }
}
"""

CREATE_COLLECTION_MUTATION = """
mutation createCollection($input: CollectionInput!) {
  collectionCreate(input: $input) {
    collection { id title }
    userErrors { field message }
  }
}
"""

UPDATE_COLLECTION_MUTATION = """
mutation updateCollection($input: CollectionInput!) {
  collectionUpdate(input: $input) {
    collection { id title }
    userErrors { field message }
  }
}
"""
