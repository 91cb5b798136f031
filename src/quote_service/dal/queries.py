"""GraphQL documents used against the Admin API."""

METAOBJECT_FIELDS = """
  id
  handle
  type
  updatedAt
  fields {
    key
    value
  }
"""

LIST_METAOBJECTS = """
query ListMetaobjects($type: String!, $first: Int!, $after: String) {
  metaobjects(type: $type, first: $first, after: $after) {
    nodes {
%s
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
""" % METAOBJECT_FIELDS

METAOBJECT_BY_HANDLE = """
query MetaobjectByHandle($handle: MetaobjectHandleInput!) {
  metaobjectByHandle(handle: $handle) {
%s
  }
}
""" % METAOBJECT_FIELDS

CREATE_METAOBJECT = """
mutation MetaobjectCreate($metaobject: MetaobjectCreateInput!) {
  metaobjectCreate(metaobject: $metaobject) {
    metaobject {
%s
    }
    userErrors {
      field
      message
    }
  }
}
""" % METAOBJECT_FIELDS

UPDATE_METAOBJECT = """
mutation MetaobjectUpdate($id: ID!, $metaobject: MetaobjectUpdateInput!) {
  metaobjectUpdate(id: $id, metaobject: $metaobject) {
    metaobject {
%s
    }
    userErrors {
      field
      message
    }
  }
}
""" % METAOBJECT_FIELDS

DELETE_METAOBJECT = """
mutation MetaobjectDelete($id: ID!) {
  metaobjectDelete(id: $id) {
    deletedId
    userErrors {
      field
      message
    }
  }
}
"""

DRAFT_ORDER_FIELDS = """
  id
  name
  email
  note2
  invoiceUrl
  totalPrice
  subtotalPrice
  totalTax
  status
  completedAt
  createdAt
  updatedAt
  lineItems(first: 10) {
    edges {
      node {
        id
        title
        quantity
        originalUnitPrice
        customAttributes {
          key
          value
        }
      }
    }
  }
"""

DRAFT_ORDER_BY_ID = """
query DraftOrderById($id: ID!) {
  draftOrder(id: $id) {
%s
  }
}
""" % DRAFT_ORDER_FIELDS

SEARCH_DRAFT_ORDERS = """
query SearchDraftOrders($first: Int!, $query: String) {
  draftOrders(first: $first, query: $query, reverse: true) {
    edges {
      node {
%s
      }
    }
  }
}
""" % DRAFT_ORDER_FIELDS

CREATE_DRAFT_ORDER = """
mutation DraftOrderCreate($input: DraftOrderInput!) {
  draftOrderCreate(input: $input) {
    draftOrder {
%s
    }
    userErrors {
      field
      message
    }
  }
}
""" % DRAFT_ORDER_FIELDS

UPDATE_DRAFT_ORDER = """
mutation DraftOrderUpdate($id: ID!, $input: DraftOrderInput!) {
  draftOrderUpdate(id: $id, input: $input) {
    draftOrder {
%s
    }
    userErrors {
      field
      message
    }
  }
}
""" % DRAFT_ORDER_FIELDS

COMPLETE_DRAFT_ORDER = """
mutation DraftOrderComplete($id: ID!, $paymentPending: Boolean) {
  draftOrderComplete(id: $id, paymentPending: $paymentPending) {
    draftOrder {
%s
    }
    userErrors {
      field
      message
    }
  }
}
""" % DRAFT_ORDER_FIELDS

SEND_DRAFT_ORDER_INVOICE = """
mutation DraftOrderInvoiceSend($id: ID!) {
  draftOrderInvoiceSend(id: $id) {
    draftOrder {
      id
      name
      email
      invoiceUrl
      invoiceSentAt
    }
    userErrors {
      field
      message
    }
  }
}
"""

DELETE_DRAFT_ORDER = """
mutation DraftOrderDelete($input: DraftOrderDeleteInput!) {
  draftOrderDelete(input: $input) {
    deletedId
    userErrors {
      field
      message
    }
  }
}
"""

SEARCH_ORDERS = """
query SearchOrders($first: Int!, $query: String!) {
  orders(first: $first, query: $query) {
    edges {
      node {
        id
        name
        email
        totalPrice
        displayFinancialStatus
        displayFulfillmentStatus
        processedAt
        createdAt
        updatedAt
        fulfillments(first: 10) {
          id
          status
          createdAt
          trackingInfo {
            number
            url
            company
          }
        }
      }
    }
  }
}
"""

STAGED_UPLOADS_CREATE = """
mutation StagedUploadsCreate($input: [StagedUploadInput!]!) {
  stagedUploadsCreate(input: $input) {
    stagedTargets {
      url
      resourceUrl
      parameters {
        name
        value
      }
    }
    userErrors {
      field
      message
    }
  }
}
"""

FILE_CREATE = """
mutation FileCreate($files: [FileCreateInput!]!) {
  fileCreate(files: $files) {
    files {
      id
      fileStatus
      alt
      createdAt
    }
    userErrors {
      field
      message
    }
  }
}
"""

FILE_BY_ID = """
query FileById($id: ID!) {
  node(id: $id) {
    id
    ... on GenericFile {
      url
      originalFileSize
      fileStatus
      alt
      mimeType
    }
    ... on MediaImage {
      fileStatus
      alt
      mimeType
      image {
        url
      }
      originalSource {
        url
        fileSize
      }
    }
    ... on Model3d {
      fileStatus
      alt
      filename
      originalSource {
        url
        fileSize
        mimeType
      }
    }
    ... on Video {
      fileStatus
      alt
      filename
      originalSource {
        url
        fileSize
        mimeType
      }
    }
  }
}
"""
